"""Concrete DESSEM file grammars, one module per input file family."""
