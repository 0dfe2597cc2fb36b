#!/usr/bin/env python3
import sys
import os

print("Running preflight import check...")
try:
    # Set dummy env vars to avoid surprises during config load
    os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")

    import duck_login.main
    print("Import duck_login.main: OK")

    import duck_login.core.orchestrator
    print("Import duck_login.core.orchestrator: OK")

    print("Preflight check passed.")
    sys.exit(0)
except Exception as e:
    print(f"Preflight check FAILED: {e}")
    import traceback
    traceback.print_exc()
    sys.exit(1)
