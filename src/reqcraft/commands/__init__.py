"""Built-in CLI sub-commands for reqcraft.

* :mod:`~reqcraft.commands.check` -- resolve the root document and report
  every import outcome.
* :mod:`~reqcraft.commands.inspect` -- print endpoints, categories,
  variables, headers, the merged document, or a mock payload.

Both load the configuration through :func:`~reqcraft.commands.common.load_snapshot`,
so they share the same settings and error handling.
"""
