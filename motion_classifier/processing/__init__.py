"""
Sensor preprocessing for driving-style classification.

Live capture and uploaded CSV files go through the same steps: fixed-size
windowing, per-channel zero repair, then fixed-range min-max normalization
into [-1, 1] before the window reaches the classifier.
"""
