from enum import Enum


class TransactionType(str, Enum):
    expense = "expense"
    income = "income"
    transfer = "transfer"


class CategorySection(str, Enum):
    expenses = "expenses"
    recurring = "recurring"
    savings = "savings"
    debt = "debt"


class RepeatCadence(str, Enum):
    monthly = "monthly"
    once = "once"
