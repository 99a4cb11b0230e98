
"""
Common utilities for the BMI client.

Modules:
- validation: weight/height and credential form validation
- auth_gateway: remote authentication API client (tagged results)
- imc_api: BMI calculation and history API client
- failures: API failure to user message mapping
- stats: BMI history summaries
- config: environment settings
"""

__all__ = [
    "validation",
    "auth_gateway",
    "imc_api",
    "failures",
    "stats",
    "config",
]

