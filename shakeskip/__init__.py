"""
ShakeSkip - a music player that answers a shake with a CD-skip effect.

This package contains the shake-gesture engine and the playback side that
acts on it:
- Accelerometer filtering and shake recognition with threshold and debounce
- A cancellable skip simulation (pause, mute, seek, resume, volume ramp)
- Typed events connecting sensor, settings and playback services
- Simulated sensor, transport and haptic hardware for local runs
"""

__version__ = "1.0.0"
