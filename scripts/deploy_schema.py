#!/usr/bin/env python
# ============================================================================
# SCHEMA DEPLOYMENT SCRIPT
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# PURPOSE: Reconcile the declared schema against a database from the shell
# USAGE:
#   python scripts/deploy_schema.py --dry-run    # Preview DDL
#   python scripts/deploy_schema.py              # Execute reconciliation
#   python scripts/deploy_schema.py --connection other.db
# ============================================================================

import sys
import os
import argparse

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import load_database_options
from core.errors import SchemaError
from core.logging import configure_logging
from infrastructure import DatabaseInitializer, create_db_access


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Reconcile the Atheon schema against a database",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/deploy_schema.py --dry-run     # Preview DDL without executing
  python scripts/deploy_schema.py               # Reconcile schema
  python scripts/deploy_schema.py --mode postgres --connection postgresql://...

Environment Variables:
  DATABASE_CONFIG       YAML configuration file (default: config/database.yaml)
  DATABASE_MODE         sqlite or postgres
  DATABASE_CONNECTION   SQLite path or PostgreSQL connection string
  SCHEMA_MAX_WORKERS    Tables reconciled in parallel (default: 1)
        """
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print planned DDL and drift without executing"
    )
    parser.add_argument(
        "--config",
        type=str,
        help="YAML configuration file (overrides DATABASE_CONFIG)"
    )
    parser.add_argument(
        "--mode",
        type=str,
        help="Database dialect (overrides configuration)"
    )
    parser.add_argument(
        "--connection",
        type=str,
        help="Connection string (overrides configuration)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    configure_logging(level="DEBUG" if args.verbose else "INFO")

    try:
        options = load_database_options(args.config)
        overrides = {}
        if args.mode:
            overrides["DATABASE_MODE"] = args.mode
        if args.connection:
            overrides["DATABASE_CONNECTION"] = args.connection
        if overrides:
            options = options.with_env_overrides(overrides)
    except SchemaError as e:
        print(f"Configuration error: {e}")
        return 2

    print("=" * 70)
    print("ATHEON - Schema Deployment")
    print("=" * 70)
    print(f"Dialect: {options.dialect.value}")
    print(f"Mode: {'DRY RUN' if args.dry_run else 'EXECUTE'}")
    print("=" * 70)

    db = create_db_access(options)
    try:
        initializer = DatabaseInitializer(db, options)

        if args.dry_run:
            print("\n[PLAN]\n")
            for plan in initializer.plan_schema():
                print(f"{plan.table.name}: {plan.action}")
                for statement in plan.statements:
                    print(f"   {statement.describe(options.dialect)};")
                for drift in plan.drift:
                    print(f"   drift: {drift}")
            print("\n" + "=" * 70)
            return 0

        result = initializer.initialize_schema()
    except SchemaError as e:
        print(f"\nDeployment failed: {type(e).__name__}: {e}")
        if getattr(e, "statement", None):
            print(f"   Statement: {e.statement}")
        return 1
    finally:
        db.close()

    print("\n[RESULTS]\n")
    for step in result.steps:
        print(f"[{step.status.upper()}] {step.name}: {step.message}")
        if step.details and args.verbose:
            for key, value in step.details.items():
                print(f"   {key}: {value}")

    for table in result.tables:
        if table.statements:
            print(f"\n{table.table} ({table.action}):")
            for statement in table.statements:
                print(f"   {statement};")

    if result.drift:
        print(f"\nDrift ({len(result.drift)}):")
        for drift in result.drift:
            print(f"   - {drift}")

    print("\n" + "=" * 70)
    print("Deployment completed successfully")
    print("=" * 70)
    return 0


if __name__ == "__main__":
    sys.exit(main())
