# Automatically load all models so metadata knows them
from finledger.models.account_model import Account
from finledger.models.transaction_model import Transaction
from finledger.models.loan_model import Loan
from finledger.models.loan_installment_model import LoanInstallment
from finledger.models.salary_profile_model import SalaryProfile
from finledger.models.salary_cycle_model import SalaryCycle
