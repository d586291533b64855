"""
Shared audio settings for the CLI, the web server and the detection worker.
"""

# Audio stream settings
TRANSFORM_SIZE = 4096  # Samples per analysed block (must be a power of two)
CHANNELS = 1  # Mono audio
RATE = 44100  # Sample rate in Hz

# Blocks allowed to wait for the detection worker before new ones are dropped
MAX_PENDING = 4


def get_transform_size():
    return TRANSFORM_SIZE
def set_transform_size(transform_size):
    global TRANSFORM_SIZE
    TRANSFORM_SIZE = transform_size

def get_rate():
    return RATE
def set_rate(rate):
    global RATE
    RATE = rate

def get_channels():
    return CHANNELS

def get_max_pending():
    return MAX_PENDING

def get_block_duration():
    """Wall-clock duration of one block, the time available for analysing it."""
    return TRANSFORM_SIZE / RATE


def clear_line():
    """Clear the current line by printing spaces and returning to start"""
    print(" " * 80, end='\r')
