"""Core domain package for autolink.

Core contains link compilation, message replacement, title lookup caching and
scope checks without any Telegram or HTTP-client specific code, keeping the
business logic portable.
"""
