from .property import Property, Warranty, InsurancePolicy, Expense, Document, MaintenanceTask
from .catalog import AssetConfig, FinancialBenchmark
from .reports import RiskReport, FinancialReport
from .snapshots import ScoreSnapshot
from .corrections import Correction, CorrectionEvent
