"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the application to the outside world (HTTP APIs, OpenAI, Spotify,
the console and the web server) by implementing the interfaces defined in
the domain layer.
"""
