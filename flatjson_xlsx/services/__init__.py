"""Column resolution, row merge, rendering and run orchestration."""
