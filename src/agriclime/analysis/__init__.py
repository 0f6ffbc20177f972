"""Pure analysis functions: severe-weather indices, heat events, climate trends."""
