"""
Tracking Management Script
Inspect and change which sites have tracking disabled, and generate API keys
for the admin endpoints
"""
import sys

from disable_tracking.config import settings
from disable_tracking.database import SessionLocal
from disable_tracking.errors import DisableTrackingError
from disable_tracking.middleware import generate_api_key
from disable_tracking.services.disable_store import DisableStateStore
from disable_tracking.services.site_registry import SiteRegistry


def _store(db):
    # No decision cache here: a running server keeps its own, so with the local
    # cache backend a restart (or the admin API) is needed for it to notice.
    return DisableStateStore(db, sites=SiteRegistry(db), history_mode=settings.DISABLE_HISTORY_MODE)


def list_states(db):
    """List every site with its tracking state"""
    print("\n" + "="*60)
    print("  SITE TRACKING STATES")
    print("="*60)

    states = _store(db).list_sites_with_state()
    if not states:
        print("No sites found.")
    for state in states:
        flag = "DISABLED" if state.disabled else "enabled"
        print(f"\n[{state.id}] {state.label} ({state.url or '-'})")
        print(f"    tracking: {flag}")

    print("\n" + "="*60)
    print()


def change_states(db, site_ids: list[int], disabled: bool):
    changed = _store(db).change_disable_state(site_ids, disabled)
    verb = "Disabled" if disabled else "Enabled"
    if changed:
        print(f"✅ {verb} tracking for sites: {', '.join(str(s) for s in changed)}")
    else:
        print("Nothing to change.")


def generate_new_key(client_name: str):
    """Generate a new API key"""
    api_key = generate_api_key()

    print("\n" + "="*60)
    print("  NEW API KEY GENERATED")
    print("="*60)
    print(f"\nClient Name: {client_name}")
    print(f"API Key:     {api_key}")
    print("\n⚠️  IMPORTANT: Save this key securely!")
    print("\nTo use this key, add it to your .env file:")
    print(f'\nAPI_KEY_1={api_key}')
    print(f'API_KEY_1_NAME="{client_name}"')
    print('API_KEY_1_SITES="*"    # or a comma separated list of site ids')
    print("\n" + "="*60)
    print()

    return api_key


def usage():
    print("\n📋 Tracking Management")
    print("\nUsage:")
    print("  python manage_tracking.py list                   - List sites and tracking state")
    print("  python manage_tracking.py disable <id> [<id>..]  - Disable tracking for sites")
    print("  python manage_tracking.py enable <id> [<id>..]   - Re-enable tracking for sites")
    print("  python manage_tracking.py install                - Create the disable-state table")
    print("  python manage_tracking.py generate-key <name>    - Generate new API key")
    print()


def main(argv=None):
    """Main function"""
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        usage()
        return 0

    command = argv[0].lower()

    if command == "generate-key":
        if len(argv) < 2:
            print("❌ Error: Please provide a client name")
            return 1
        generate_new_key(" ".join(argv[1:]))
        return 0

    if command in ("disable", "enable"):
        try:
            site_ids = [int(arg) for arg in argv[1:]]
        except ValueError:
            print("❌ Error: Site ids must be integers")
            return 1
        if not site_ids:
            print("❌ Error: Please provide at least one site id")
            return 1

    if command not in ("list", "disable", "enable", "install"):
        print(f"❌ Unknown command: {command}")
        usage()
        return 1

    db = SessionLocal()
    try:
        if command == "list":
            list_states(db)
        elif command == "install":
            _store(db).install()
            print("✅ Disable-state table ready")
        else:
            change_states(db, site_ids, command == "disable")
    except DisableTrackingError as e:
        print(f"❌ {e.message}")
        return 1
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
