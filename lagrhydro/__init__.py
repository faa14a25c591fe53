"""Building blocks for multi-material Lagrangian hydrodynamics on structured meshes."""

__version__ = "0.1.0"

__all__ = ["energy", "geometry", "lagrange", "mesh", "remap_prep"]