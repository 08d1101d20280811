from datetime import date
import argparse

from runclub.api.deps import sql_repositories
from runclub.core.config import settings
from runclub.db import Base, SessionLocal, engine
from runclub.models.rsvp import RSVP
from runclub.models.run import Run
from runclub.services.leaderboard import LeaderboardStatsStore
from runclub.services.runs import RunService

DEMO_USERS = [
    # first, last, username, runs, miles
    ("Kam", "Rivera", "kam", 42, 215.5),
    ("Amy", "Chen", "amy", 30, 160.0),
    ("Bob", "Singh", "bob", 12, 48.2),
]


def clear_runs(db) -> None:
    """Delete every run (and RSVP) so we can reseed cleanly."""
    db.query(RSVP).delete()
    db.query(Run).delete()
    db.commit()


def seed_demo_users(store: LeaderboardStatsStore) -> int:
    """Add a few registered leaderboard users unless their handles exist."""
    added = 0
    for first, last, username, runs, miles in DEMO_USERS:
        if store.repo.find_by_username(username):
            continue
        store.create(
            {
                "firstName": first,
                "lastName": last,
                "username": username,
                "totalRuns": runs,
                "totalMiles": miles,
                "isRegistered": True,
            }
        )
        added += 1
    return added


def main():
    parser = argparse.ArgumentParser(description="Seed sample runs into the run club database.")
    parser.add_argument("--reset", action="store_true", help="Delete existing runs first.")
    parser.add_argument("--users", action="store_true", help="Also add demo leaderboard users.")
    args = parser.parse_args()

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if args.reset:
            clear_runs(db)
        repos = sql_repositories(db)
        seeded = RunService(repos.runs, settings.reference_timezone).seed_samples(date.today())
        print(f"Seeded {seeded} sample runs")
        if args.users:
            print(f"Seeded {seed_demo_users(LeaderboardStatsStore(repos.leaderboard))} demo users")
    finally:
        db.close()


if __name__ == "__main__":
    main()
