"""
Root conftest.py for the eLN notebook project.

Puts the service directory of each collected test on sys.path so that its
package imports the same way it does when the service runs.
"""

import sys
from pathlib import Path


def pytest_configure(config):
    """Add the project root to sys.path."""
    root_dir = Path(__file__).parent
    sys.path.insert(0, str(root_dir))


def pytest_collection_modifyitems(session, config, items):
    """
    Add the appropriate service directory to sys.path before tests run.

    This examines each test file and adds its service directory to the path.
    """
    root_dir = Path(__file__).parent
    services_added = set()

    for item in items:
        test_path = Path(item.fspath)
        if "services" not in test_path.parts:
            continue

        services_idx = test_path.parts.index("services")
        if services_idx + 1 >= len(test_path.parts):
            continue
        service_name = test_path.parts[services_idx + 1]
        service_path = root_dir / "services" / service_name

        if service_path.exists() and service_name not in services_added:
            sys.path.insert(0, str(service_path))
            services_added.add(service_name)
