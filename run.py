"""
LUNARA storefront backend entry point.
"""
import os
import sys
import traceback

print("[LUNARA] ========================================")
print("[LUNARA] Starting LUNARA API v1.0.0")
print("[LUNARA] ========================================")

config_name = os.getenv('FLASK_ENV', 'production')
print(f"[LUNARA] Config: {config_name}")
print(f"[LUNARA] PORT: {os.getenv('PORT', 'not set')}")
print(f"[LUNARA] DATABASE_URL: {'set' if os.getenv('DATABASE_URL') else 'NOT SET'}")
print(f"[LUNARA] REDIS_URL: {'set' if os.getenv('REDIS_URL') else 'not set (in-memory sessions)'}")

try:
    from app import create_app
    app = create_app(config_name)
    print(f"[LUNARA] App created, {len(list(app.url_map.iter_rules()))} routes")
except Exception as e:
    print(f"[LUNARA] FATAL ERROR during app creation: {e}")
    traceback.print_exc()
    sys.exit(1)

if __name__ == '__main__':
    app.run(
        host='0.0.0.0',
        port=int(os.getenv('PORT', 5000)),
        debug=os.getenv('FLASK_ENV') == 'development'
    )
