# models_bootstrap.py
from business import models as _business_models
from worker import models as _worker_models
from availability import models as _availability_models
from job import models as _job_models
from swap import models as _swap_models
