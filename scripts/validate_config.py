#!/usr/bin/env python3
"""Configuration and template catalog validation script."""

import argparse
import sys
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from trip_progress.config.loader import ConfigLoader
from trip_progress.errors import ConfigError, TemplateError
from trip_progress.templates.provider import StaticTemplateProvider


def validate_catalog(catalog_path, fallback_total_days, fallback_theme) -> bool:
    """Load the template catalog and check every trip's day sequence."""
    try:
        if catalog_path:
            provider = StaticTemplateProvider.from_yaml(
                catalog_path,
                fallback_total_days=fallback_total_days,
                fallback_theme=fallback_theme,
            )
        else:
            provider = StaticTemplateProvider.default(
                fallback_total_days=fallback_total_days,
                fallback_theme=fallback_theme,
            )
    except TemplateError as e:
        print(f"❌ Template catalog rejected: {e}")
        return False

    valid = True
    for trip_name, days in provider.templates.items():
        expected = list(range(1, len(days) + 1))
        if sorted(days) != expected:
            print(f"❌ {trip_name}: day numbers {sorted(days)} are not contiguous from 1")
            valid = False
            continue

        stop_ids = [stop.id for day in days.values() for stop in day]
        if len(stop_ids) != len(set(stop_ids)):
            print(f"❌ {trip_name}: stop ids repeat across days")
            valid = False
            continue

        print(f"✅ {trip_name}: {len(days)} days, {len(stop_ids)} stops")

    return valid


def main():
    """Main validation function."""
    parser = argparse.ArgumentParser(description="Validate trip progress configuration")
    parser.add_argument("--config-dir", type=Path, default=None,
                        help="Directory containing trip_progress.yaml")
    args = parser.parse_args()

    print("🔍 Validating trip progress configuration...")

    loader = ConfigLoader.create(args.config_dir)
    try:
        config = loader.load()
    except ConfigError as e:
        print("❌ Configuration is invalid:")
        for error in e.errors:
            print(f"  • {error.field}: {error.message} (value: {error.value})")
        if not e.errors:
            print(f"  • {e}")
        return 1

    print(f"✅ Configuration loaded from {loader.config_dir}")
    print(f"   persistence: {'on' if config.persistence.enabled else 'off'}"
          f" ({config.persistence.db_path})")
    print(f"   sync: {config.sync.method if config.sync.enabled else 'off'}")

    print("\n📋 Validating template catalog...")
    if not validate_catalog(
        config.templates.catalog_path,
        config.templates.fallback_total_days,
        config.templates.fallback_theme,
    ):
        return 1

    print("\n🎉 All configurations are valid!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
