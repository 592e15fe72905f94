from app.crud.base import CRUDBase
from app.models.test_series import TestSeries

class CRUDTestSeries(CRUDBase[TestSeries]):
    pass

test_series = CRUDTestSeries(TestSeries)
