# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic and database access for a single domain aggregate:
#
#   user_service    : register / login / logout / soft delete for User
#   post_service    : CRUD + pagination for Post
#   comment_service : create / list / delete for Comment
#   counters        : post_count and comment_status maintenance
#
# All service functions accept an AsyncSession as their first argument
# so that the router layer controls the transaction boundary via the
# ``get_db`` dependency.
