"""
Onboarding preferences and other per-client values.

Responsibilities:
- Model the onboarding answers (coffee types, vibes, budget, flavor, milk).
- Persist them, the chosen display name and the cached uid/email in the
  client's signed session through a single ``ClientStore``.
"""
