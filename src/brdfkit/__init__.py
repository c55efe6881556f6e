"""Reflectance models and a physical-plausibility verifier.

This package models BRDFs used in physically-based rendering and checks that a
model obeys Helmholtz reciprocity and energy conservation using Monte Carlo
sampling over the hemisphere.

Subpackages:
    core: Spectrum value type, vector utilities, hemisphere sampling, Taichi backend
    materials: BRDF models (Lambertian, Phong, shiny diffuse, composite)
    verify: Reciprocity and energy-conservation checks, results, diagnostics
    library: JSON definition schema, variant registry, model library
    preview: Lobe rendering and PNG export
"""

__version__ = "0.1.0"
