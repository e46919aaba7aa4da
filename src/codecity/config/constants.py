"""Configuration constants.

This module contains truly constant values that should NOT be user-configurable.
For configurable values, see models.py (TreeConfig, DatabaseConfig, etc.).
"""

# =============================================================================
# Generated Node Ids
# =============================================================================
# Synthetic nodes draw ids from a descending sequence just below the 32-bit
# signed maximum. Real snapshot ids must stay below the reserved range.

GENERATED_ID_HIGH_WATER = 2**31 - 1
"""Exclusive upper bound of generated ids."""

GENERATED_ID_RESERVED = 1_000_000
"""Size of the id range reserved for generated nodes."""

# =============================================================================
# Snapshot Store
# =============================================================================

FILE_SCOPE = "FIL"
"""Snapshot scope of file-level elements (the only ones that become leaves)."""

PROJECT_SCOPE = "PRJ"
"""Scope of the root snapshot anchoring one analysis run."""

# =============================================================================
# API Limits
# =============================================================================

TREE_DEPTH_MAX = 64
"""Maximum nesting depth accepted by serialized tree responses."""

# =============================================================================
# Protocol/Validation Constants
# =============================================================================

PORT_MIN = 0
PORT_MAX = 65535
"""Valid port range."""
