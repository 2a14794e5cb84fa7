class InternalURIs:
    API = "/api"
    ADMIN = API + "/admin"
    MEALS = API + "/meals"
    MEAL_DETAIL = MEALS + "/{meal_id}"
    ADMIN_LOGIN = ADMIN + "/login"
    ADMIN_STATS = ADMIN + "/stats"
    IMAGE_STATS = ADMIN + "/image-stats"
    ADD_SAMPLE_MEALS = ADMIN + "/add-sample-meals"
    GENERATE_MEAL_IMAGE = ADMIN + "/generate-meal-image"
    BATCH_GENERATE_IMAGES = ADMIN + "/batch-generate-images"
    BATCH_PROGRESS = ADMIN + "/batch-progress"
    STOP_BATCH = ADMIN + "/stop-batch"


class ExternalURIs:
    OPENAI_IMAGES = "/images/generations"
    CLOUDINARY_UPLOAD = "https://api.cloudinary.com/v1_1/{cloud_name}/image/upload"
