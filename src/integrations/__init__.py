"""
Integrations layer.

Code that talks to systems outside the intake proxy lives here, under
src/integrations/clients/real_http (the tenant workflow endpoints).
"""
