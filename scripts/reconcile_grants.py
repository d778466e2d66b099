# scripts/reconcile_grants.py
# Usage: python -m scripts.reconcile_grants
import sys

from sqlmodel import Session

from storefront.database import engine
from storefront.services.access_grant import reconcile_access_grants


def main():
    with Session(engine) as session:
        repaired = reconcile_access_grants(session)

    print(f"Repaired {repaired} missing access grant(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
