"""
Gecko profiler defaults used when the settings file leaves them out
"""

DEFAULT_FEATURES = "js,stackwalk,leaf"
DEFAULT_THREADS = "GeckoMain,Compositor,Renderer"

# Sampling intervals in milliseconds
DESKTOP_SAMPLING_INTERVAL = 1
ANDROID_SAMPLING_INTERVAL = 4

DEFAULT_BUFFER_SIZE = 13107200

# Where profiles land on the device before they are pulled to the host
ANDROID_PROFILE_DIR = "/sdcard"
