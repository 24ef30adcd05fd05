from .report import ReportBuilder, build_report
from .snapshot import ReportCache
