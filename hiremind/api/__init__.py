"""HTTP surface for HireMind."""
