from unicampus.core.database import SessionLocal
from unicampus.core.logging import configure_logging
from unicampus.services.matricule import sweep_duplicate_matricules


def main():
    configure_logging()
    db = SessionLocal()
    try:
        removed = sweep_duplicate_matricules(db)
        print(f"Removed {removed} duplicate student profile(s).")
    finally:
        db.close()


if __name__ == "__main__":
    main()
