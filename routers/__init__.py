# routers/__init__.py
#
# Routers are included individually by main.create_app().
