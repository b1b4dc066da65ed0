"""
Initialize database and seed demo analytics data.

Run this script once to set up the database:
    python init_db.py
"""

import random
from datetime import datetime, timedelta, timezone

from seolnk.database import engine, Base, SessionLocal
from seolnk.models import BioEvent, BioLink, BioPage, Link, LinkEvent, RotatorDestination

USER_AGENTS = [
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) Mobile/15E148",
    "Mozilla/5.0 (iPad; CPU OS 17_0 like Mac OS X) Mobile/15E148",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/120.0 Safari/537.36",
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) Chrome/120.0 Mobile Safari/537.36",
]
REFERRERS = ["", "https://twitter.com/seolnk", "https://www.google.com/search?q=seolnk", None]
COUNTRIES = ["US", "GB", "DE", "IN", None]


def init_database():
    """Create all database tables"""
    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    print("Database tables created successfully!")


def _random_time(now: datetime, days: int) -> datetime:
    return now - timedelta(days=random.randint(0, days - 1), minutes=random.randint(0, 1439))


def seed_demo_data(events_per_link: int = 60):
    """Create one link of each kind plus a bio page with random events"""
    db = SessionLocal()

    try:
        if db.query(Link).first():
            print("Links already exist in the database.")
            print("Skipping demo data.")
            return

        now = datetime.now(timezone.utc)

        preview = Link(slug="demo-preview", kind="preview", title="Demo preview card",
                       destination_url="https://example.com/article")
        alias = Link(slug="demo-alias", kind="alias", title="Demo alias",
                     destination_url="https://example.com/pricing")
        protected = Link(slug="demo-secret", kind="protected", title="Demo protected link",
                         destination_url="https://example.com/private")
        rotator = Link(slug="demo-rotator", kind="rotator", title="Demo rotator")
        rotator.destinations = [
            RotatorDestination(url="https://example.com/a"),
            RotatorDestination(url="https://example.com/b"),
            RotatorDestination(url="https://example.com/c"),
        ]
        db.add_all([preview, alias, protected, rotator])
        db.flush()

        for link, event_type in ((preview, "view"), (alias, "click"), (protected, "unlock")):
            for _ in range(events_per_link):
                db.add(LinkEvent(
                    link_id=link.id,
                    event_type=event_type,
                    occurred_at=_random_time(now, 30),
                    referrer=random.choice(REFERRERS),
                    user_agent=random.choice(USER_AGENTS)
                ))
            if event_type == "view":
                link.views_count = events_per_link
            elif event_type == "click":
                link.clicks_count = events_per_link

        for _ in range(events_per_link):
            destination = random.choice(rotator.destinations)
            destination.clicks_count += 1
            db.add(LinkEvent(
                link_id=rotator.id,
                destination_id=destination.id,
                event_type="click",
                occurred_at=_random_time(now, 14),
                referrer=random.choice(REFERRERS),
                user_agent=random.choice(USER_AGENTS),
                country_code=random.choice(COUNTRIES)
            ))
        rotator.clicks_count = events_per_link

        page = BioPage(username="demo", title="Demo bio page")
        page.links = [
            BioLink(title="Website", url="https://example.com", position=0),
            BioLink(title="Newsletter", url="https://example.com/news", position=1),
        ]
        db.add(page)
        db.flush()

        for _ in range(events_per_link):
            db.add(BioEvent(
                bio_page_id=page.id,
                event_type="page_view",
                occurred_at=_random_time(now, 30),
                referrer=random.choice(REFERRERS),
                user_agent=random.choice(USER_AGENTS)
            ))
        page.views_count = events_per_link

        for _ in range(events_per_link // 3):
            bio_link = random.choice(page.links)
            bio_link.clicks_count += 1
            db.add(BioEvent(
                bio_page_id=page.id,
                bio_link_id=bio_link.id,
                event_type="link_click",
                occurred_at=_random_time(now, 30),
                referrer=random.choice(REFERRERS),
                user_agent=random.choice(USER_AGENTS)
            ))

        db.commit()
        print("Demo data created: demo-preview, demo-alias, demo-secret, demo-rotator, bio page 'demo'")

    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    print("=" * 50)
    print("SEOLnk Analytics - Database Initialization")
    print("=" * 50)

    init_database()
    seed_demo_data()

    print("\nYou can now start the server with:")
    print("    uvicorn seolnk.main:app --reload")
