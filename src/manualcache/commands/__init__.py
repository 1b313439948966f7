"""Built-in CLI sub-commands for manualcache.

* :mod:`~manualcache.commands.fetch` -- request a URL through the cache.
* :mod:`~manualcache.commands.store` -- inspect and clear the store.
* :mod:`~manualcache.commands.config` -- view and modify settings.
"""
