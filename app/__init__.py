"""
GameStore application package.

Layered architecture:

  app/repositories/ pure I/O: parameterized SQL over a SQLAlchemy session.
  app/services/     business logic: validation and domain rules.
  app/validation.py the payload contract shared by the API and the client.

Route handlers in ``gamestore_api.py`` open a session on the shared
``database.StoreConnection``, wrap it in a repository and hand that to a
service, keeping the HTTP layer free of SQL.
"""
