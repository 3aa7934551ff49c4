#!/usr/bin/env python3
"""Simple script to verify config.example.yaml structure without importing the package."""

import yaml
from pathlib import Path

# Required keys per transport tag
TRANSPORT_KEYS = {
    'smtp': ['hostname', 'port'],
    'ses': ['region'],
    'sendmail': [],
}


def verify_config_structure():
    """Verify config.example.yaml has the expected structure."""
    config_file = Path("config.example.yaml")

    if not config_file.exists():
        print("✗ config.example.yaml not found")
        return False

    try:
        with open(config_file, 'r') as f:
            config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        print(f"✗ Failed to parse config.example.yaml: {e}")
        return False

    if not isinstance(config, dict):
        print("✗ config.example.yaml must contain a mapping at the top level")
        return False

    errors = []

    # Walk down to notifications.processors.email
    section = config
    for key in ('notifications', 'processors', 'email'):
        if not isinstance(section, dict) or key not in section:
            errors.append(f"Missing required section: {key}")
            section = None
            break
        section = section[key]

    if section is not None and not isinstance(section, dict):
        errors.append("'notifications.processors.email' must be a dictionary")
        section = None

    if section is not None:
        if not section.get('sender'):
            errors.append("Missing required key: sender")

        transport = section.get('transport')
        if not isinstance(transport, dict):
            errors.append("'transport' must be a dictionary")
        else:
            tag = transport.get('transport')
            if tag not in TRANSPORT_KEYS:
                errors.append(
                    f"transport.transport must be one of {', '.join(TRANSPORT_KEYS)}, got: {tag}"
                )
            else:
                for key in TRANSPORT_KEYS[tag]:
                    if key not in transport:
                        errors.append(f"{tag} transport missing key: {key}")

        broadcast = section.get('broadcastConfig', section.get('broadcast_config'))
        if broadcast is not None:
            if not isinstance(broadcast, dict):
                errors.append("'broadcastConfig' must be a dictionary")
            elif broadcast.get('receiver', 'none') not in ('none', 'users', 'config'):
                errors.append(f"broadcastConfig has invalid receiver: {broadcast.get('receiver')}")

    # Check optional keys have correct types
    optional_checks = {
        'catalog': dict,
        'logging': dict,
    }

    for key, expected_type in optional_checks.items():
        if key in config and not isinstance(config[key], expected_type):
            errors.append(f"'{key}' must be of type {expected_type.__name__}")

    if errors:
        print("✗ config.example.yaml validation failed:")
        for error in errors:
            print(f"  - {error}")
        return False
    else:
        print("✓ config.example.yaml structure is valid")
        print(f"  - Transport: {section['transport']['transport']}")
        print(f"  - Sender: {section['sender']}")

        broadcast = section.get('broadcastConfig', section.get('broadcast_config')) or {}
        print(f"  - Broadcast receiver: {broadcast.get('receiver', 'none')}")
        print(f"  - Catalog: {(config.get('catalog') or {}).get('base_url', 'not set')}")
        return True


if __name__ == "__main__":
    import sys
    success = verify_config_structure()
    sys.exit(0 if success else 1)
