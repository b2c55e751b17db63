"""Turn processing.

This package sequences one player turn (integrity check, structural
validation, intent recognition, transition, narration, signing) so the HTTP
routes and the terminal client go through the same pipeline and show up
consistently in server logs.
"""
