#!/usr/bin/env python3
"""Configuration validation script."""

import sys
from pathlib import Path
from typing import List, Optional

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from ensemble_app.config.loader import ConfigLoader
from ensemble_app.config.validation import ConfigIssue, ConfigValidator
from ensemble_app.errors import ConfigurationError


def report_issues(label: str, issues: List[ConfigIssue]) -> bool:
    """Print validation issues, returning True when there are none."""
    if issues:
        print(f"❌ {label}: found {len(issues)} validation errors:")
        for issue in issues:
            print(f"  • {issue.field}: {issue.message} (value: {issue.value})")
        return False

    print(f"✅ {label} is valid")
    return True


def main(config_dir: Optional[str] = None):
    """Main validation function."""
    print("🔍 Validating Ensemble App configuration...")

    loader = ConfigLoader.create(Path(config_dir) if config_dir else None)
    all_valid = True

    print(f"\n📊 Validating settings in {loader.config_dir}...")
    try:
        merged = loader.merge_config()
        all_valid &= report_issues("Merged settings", ConfigValidator.validate_config(merged))
    except ConfigurationError as e:
        print(f"❌ Error reading settings: {e}")
        all_valid = False

    print(f"\n📋 Validating runtime instrument list...")
    try:
        instruments = loader.load_instruments()
        print(f"  Instruments: {', '.join(instruments)}")
        all_valid &= report_issues("Instrument list", ConfigValidator.validate_instruments(instruments))
    except ConfigurationError as e:
        print(f"❌ Error reading instrument list: {e}")
        report_issues("Instrument list", e.issues)
        all_valid = False

    if all_valid:
        print(f"\n🎉 All configuration validation passed!")
        sys.exit(0)
    else:
        print(f"\n❌ Configuration validation failed!")
        sys.exit(1)


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else None)
