"""Module __init__: foundational pieces of Rendezvous."""
#
# WHAT'S IN THIS MODULE:
# - config.py: Coordinator and logging settings (dataclasses + RENDEZVOUS_* env)
# - clock.py: Injectable millisecond time sources for the debounce gate
#
