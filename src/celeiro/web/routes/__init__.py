"""HTTP routers."""

from celeiro.web.routes import accounts, auth, budgets, financial, goals, rules

ROUTERS = (auth.router, accounts.router, financial.router, budgets.router, goals.router, rules.router)
