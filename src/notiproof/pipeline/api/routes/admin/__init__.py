from notiproof.pipeline.api.routes.admin.seed import router as seed
from notiproof.pipeline.api.routes.admin.weights import router as weights

admin_routers = [
    seed,
    weights,
]
