"""
Application Layer

Orchestrates playback, checkpointing, bookmarks and the library on top of
the domain model. Talks to infrastructure only through the ports in
``application.interfaces``.
"""
