import sys
from pathlib import Path

# Add project root to sys.path
BASE_DIR = Path(__file__).resolve().parent.parent
sys.path.append(str(BASE_DIR))

from riskforecast.adapters.config.settings_loader import load_settings

try:
    settings = load_settings(sys.argv[1] if len(sys.argv) > 1 else None)
    print(f"DATA_API: {settings.get_rest_url()}")
    print(f"INSIGHT_STORE: {settings.insight_store_type}")
    print(f"CACHE: {settings.cache_type} (ttl={settings.cache_ttl_seconds}s)")
    print(f"TREND_CUTOFF: {settings.policy.trend.change_threshold}")
    print(f"BREACH_CUTOFFS: {settings.policy.breach.critical_days}/{settings.policy.breach.high_days}/{settings.policy.breach.medium_days}")
    print("Configuration loaded successfully!")
except Exception as e:
    print(f"Configuration failed: {e}")
    sys.exit(1)
