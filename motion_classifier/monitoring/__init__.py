"""
Live capture and periodic classification.

Sensor events update the latest readings, a fixed-rate capture trigger turns
them into six-channel samples, and a slower trigger classifies each full window.
"""
