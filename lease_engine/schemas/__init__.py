"""Data contracts for engine results and API payloads."""
