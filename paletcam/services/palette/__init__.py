"""
Paletcam Palette Module

Provides pixel packing, median-cut quantization, grid sampling, candidate
scoring, dominant color selection and temporal smoothing for live camera
palettes.
"""
