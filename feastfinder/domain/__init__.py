"""Domain Layer: value objects, models, errors and ports.

Has no knowledge of HTTP, OpenAI or the CLI; infrastructure adapters
implement the interfaces declared here.
"""
