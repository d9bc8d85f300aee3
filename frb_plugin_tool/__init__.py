"""frb-plugin-tool: scaffolds Flutter FFI plugins backed by a Rust library."""

__version__ = "0.1.0"
