import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from lounge import create_app
from lounge.extensions import db


def create_tables():
    app = create_app({"TIMER_TICKER_ENABLED": False})
    with app.app_context():
        # Create all tables
        db.create_all()
        print(f"Created database tables: {sorted(db.metadata.tables.keys())}")

if __name__ == "__main__":
    create_tables()
