"""
Cafe discovery.

Responsibilities:
- Hold the static seed catalogue and filter it by tags, text and distance.
- Query the places provider and normalise raw places into ``Cafe`` records.
- Score cafes against onboarding preferences (match engine).
- Produce map marker plans and resolve the user's location.
"""
