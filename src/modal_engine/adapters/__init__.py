"""Front ends that drive an engine from a UI toolkit."""
