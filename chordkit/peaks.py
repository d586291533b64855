"""
Spectral peak picking with parabolic frequency refinement.
"""
import math

# Minimum peak level, in the analyzer's decibel-like unit
PEAK_THRESHOLD = 0.1

# Below this the three-point parabola is flat and the offset is meaningless
DEGENERATE_DENOMINATOR = 1e-4


def parabolic_offset(alpha, beta, gamma):
    """
    Offset in bins of the vertex of the parabola through three magnitudes.

    Returns None when the parabola is degenerate (flat top).
    """
    denominator = alpha - 2.0 * beta + gamma
    if abs(denominator) <= DEGENERATE_DENOMINATOR:
        return None
    return 0.5 * (alpha - gamma) / denominator


def search_bounds(window, bin_width, half_count):
    """First and last bin of the search band (interior bins lie strictly between)."""
    min_bin = max(1, int(math.floor(window.min_freq / bin_width)))
    max_bin = min(half_count - 2, int(math.floor(window.max_freq / bin_width)))
    return min_bin, max_bin


def find_peaks(magnitudes, frequencies, window, threshold=PEAK_THRESHOLD):
    """
    Find local maxima of the spectrum inside the frequency window.

    Args:
        magnitudes: decibel-like magnitude per bin
        frequencies: bin centre frequencies (Hz), same length
        window: FrequencyWindow to search
        threshold: minimum magnitude of a peak

    Returns:
        list of (frequency, magnitude) tuples in ascending bin order
    """
    half_count = len(magnitudes)
    if half_count < 4:
        return []

    bin_width = float(frequencies[1] - frequencies[0])
    if bin_width <= 0:
        return []

    min_bin, max_bin = search_bounds(window, bin_width, half_count)

    peaks = []
    for i in range(min_bin + 1, max_bin):
        mag = float(magnitudes[i])
        prev_mag = float(magnitudes[i - 1])
        next_mag = float(magnitudes[i + 1])

        if not (mag > threshold and mag > prev_mag and mag > next_mag):
            continue

        offset = parabolic_offset(prev_mag, mag, next_mag)
        if offset is None:
            peaks.append((float(frequencies[i]), mag))
            continue

        refined = float(frequencies[i]) + offset * bin_width
        # Refinement can push an edge peak out of the band
        if window.contains(refined):
            peaks.append((refined, mag))

    return peaks
