import os

# Project root directory (used for default state paths)
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))

# ============================================================================
# SLEEP TIMER - Single Slot, Durable
# ============================================================================
# One armed timer at most. Arming a new one replaces the old one.
# The armed record lives in NAPCLOCK_STATE_PATH and survives restarts;
# on startup the record is reconciled against the wake scheduler.
# ============================================================================

NAPCLOCK_STATE_PATH = os.getenv('NAPCLOCK_STATE_PATH', os.path.expanduser('~/.napclock_state.json'))
TIMER_STATE_KEY = 'sleep_timer_state'  # Well-known key of the armed timer record
TIMER_SETTINGS_KEY = 'sleep_timer_settings'  # Last selection shown when the timer sheet re-opens

# Preset durations (minutes) offered by the timer sheet, by index.
# The index right after the last preset is "end of content".
TIMER_PRESETS_MINUTES = [
    int(part) for part in os.getenv('TIMER_PRESETS_MINUTES', '5,10,15,30,60').split(',') if part.strip()
]

# Fire time stored for "end of content" timers (no wall-clock deadline)
TIMER_END_OF_CONTENT_SENTINEL_MS = int(os.getenv('TIMER_END_OF_CONTENT_SENTINEL_MS', str(2 ** 63 - 1)))

# Cancel an armed timer when the host application shuts down
TIMER_CANCEL_ON_CLOSE = os.getenv('TIMER_CANCEL_ON_CLOSE', 'false').lower() == 'true'

# Wake scheduler permission (in-process scheduler only; OS adapters report their own)
WAKE_PERMISSION_GRANTED = os.getenv('WAKE_PERMISSION_GRANTED', 'true').lower() == 'true'

# Durable store write retries (local I/O, transient OSError only)
STORE_MAX_RETRIES = int(os.getenv('STORE_MAX_RETRIES', '2'))
STORE_RETRY_DELAY = float(os.getenv('STORE_RETRY_DELAY', '0.05'))  # Initial retry delay in seconds

# Analytics (jsonl event log)
EVENT_LOG_ENABLED = os.getenv('EVENT_LOG_ENABLED', 'true').lower() == 'true'
EVENT_LOG_PATH = os.getenv('EVENT_LOG_PATH', os.path.expanduser('~/.napclock_events.jsonl'))

# Event bus (content-advance signal for end-of-content timers)
EVENT_BUS_MAX_QUEUE = int(os.getenv('EVENT_BUS_MAX_QUEUE', '100'))
EVENT_BUS_ENFORCE_WHITELIST = os.getenv('EVENT_BUS_ENFORCE_WHITELIST', 'true').lower() == 'true'

# MPD (Music Player Daemon) settings - playback the timer pauses/advances
MPD_HOST = os.getenv('MPD_HOST', 'localhost')
MPD_PORT = int(os.getenv('MPD_PORT', '6600'))
MPD_TIMEOUT = int(os.getenv('MPD_TIMEOUT', '10'))

# Logging
LOG_OUTPUTS = os.getenv('LOG_OUTPUTS', 'stdout')  # comma list: stdout, stderr, file
LOG_FILE_PATH = os.getenv('LOG_FILE_PATH', f'{PROJECT_ROOT}/logs/napclock.log')
DEBUG_LOG_OUTPUTS = os.getenv('DEBUG_LOG_OUTPUTS', LOG_OUTPUTS)
DEBUG_LOG_FILE_PATH = os.getenv('DEBUG_LOG_FILE_PATH', LOG_FILE_PATH)
