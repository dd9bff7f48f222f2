#!/usr/bin/env python3
"""Constants for clipboard listener restarts and reads.

A listener whose backend goes away (wl-paste exiting, the X connection
closing) is restarted with exponential backoff.
"""

# Initial delay before restarting a lost listener in seconds.
INITIAL_WAIT: float = 1.0

# Maximum delay between restart attempts in seconds.
MAX_WAIT: float = 60.0

# Multiplier for exponential backoff (delay = initial * multiplier^attempt).
WAIT_MULTIPLIER: float = 2.0

# Timeout in seconds for reading one format from the clipboard owner, so an
# unresponsive owner cannot stall capture.
FETCH_TIMEOUT: float = 2.0
