"""Column grammar layer: field coercion and record grammars."""
