"""State labor-market map: BLS LAUS unemployment and OEWS software-developer wages."""
