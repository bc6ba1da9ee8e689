"""create-x4: scaffold a full-stack TypeScript monorepo from the x4 template."""

__version__ = "0.1.0"
