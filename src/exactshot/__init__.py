"""
exactshot - Exact-Time Web Page Screenshots

Captures a live web page in a headless browser at a precise wall-clock
instant, with the capture time stamped onto the image.
"""

__version__ = "0.1.0"
__author__ = "exactshot Contributors"
