import os
import sys
from sqlalchemy import create_engine, inspect
from sqlalchemy.exc import SQLAlchemyError
from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv()

# Add the project root to the python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from qr_wallet.db import DATABASE_URL, init_db as create_tables
from qr_wallet.models import CacheEntry


def init_db(url=DATABASE_URL):
    print(f"Connecting to: {url}")
    engine = create_engine(url)

    try:
        if inspect(engine).has_table(CacheEntry.__tablename__):
            print("Cache already initialized. Skipping setup.")
            return
        print("Cache not initialized. Creating tables...")
        create_tables(bind=engine)
        print("Cache initialization complete.")
    except SQLAlchemyError as e:
        print(f"Error during cache initialization: {e}")
        sys.exit(1)


if __name__ == "__main__":
    init_db()
