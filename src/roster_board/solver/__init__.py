"""Everything on the solver side of the board: constraints, wire types, decoding."""
