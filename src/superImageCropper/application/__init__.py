"""Application layer: orchestration, DTOs and the geometry provider interface."""
