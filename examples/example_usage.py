"""Example: drive the service layer directly, without Flask.

Controllers are thin; every rule lives in the services, so a script can
end an event and read the resulting report the same way the API does.
"""

import importlib
import sys

from config import get_settings_module

from event_presence.main import container_from_settings


def main(event_id: int = 1):
    settings = importlib.import_module(get_settings_module())
    container = container_from_settings(settings)

    print(container.lifecycle_service.get_phase(event_id).phase.value)
    print(container.analytics_service.event_overview(event_id).to_dict())
    print(container.analytics_service.top_participants(event_id, limit=5).to_dict())


if __name__ == "__main__":
    main(int(sys.argv[1]) if len(sys.argv) > 1 else 1)
