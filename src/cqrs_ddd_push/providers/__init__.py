"""Provider adapters.

Each subpackage pairs a payload model, its response classification and an
adapter implementing the push ports. Import the provider you need, e.g.
``from cqrs_ddd_push.providers.fcm import FcmAdapter``.
"""
