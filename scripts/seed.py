"""Database seeder and demo runner; see ``blog_api.demo`` for the commands."""
from blog_api.demo import main

if __name__ == "__main__":
    main()
