# models_bootstrap.py
from organization import models as _org_models
from rating import models as _rating_models
