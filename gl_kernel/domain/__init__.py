"""Pure domain layer: DTOs, validation rules, tenancy and time."""
