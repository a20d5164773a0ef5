import os
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from campusclubs import create_app
from campusclubs.seeding import seed_all


app = create_app()


def seed_demo_data():
    admin_email = os.getenv("ADMIN_EMAIL", "admin@university.edu")
    admin_password = os.getenv("ADMIN_PASSWORD", "AdminPass123")
    student_password = os.getenv("STUDENT_PASSWORD", "StudentPass123")

    with app.app_context():
        summary = seed_all(
            student_count=int(os.getenv("SEED_STUDENTS", "40")),
            club_count=int(os.getenv("SEED_CLUBS", "6")),
            admin_email=admin_email,
            admin_password=admin_password,
            student_password=student_password,
            seed_value=int(os.getenv("SEED_RANDOM", "42")),
            reset=os.getenv("SEED_RESET", "0") == "1",
        )

    if summary is None:
        print("Demo data already exists. Set SEED_RESET=1 to recreate.")
        return
    print(f"Super admin: {admin_email} / {admin_password}")
    print(f"Student and club admin password: {student_password}")
    print(
        f"Seeded {summary['students']} students, {summary['clubs']} clubs, "
        f"{summary['events']} events ({summary['past_events']} past)."
    )


if __name__ == "__main__":
    seed_demo_data()
