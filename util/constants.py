# util/constants.py
class InternalURIs:
    API = "/api"
    V1 = API + "/v1"
    ITEMS = V1 + "/items"
    ITEM = ITEMS + "/{item_id}"
    GENERATE = V1 + "/generate"
    GENERATE_BATCH = V1 + "/generate-batch"
    JOBS = V1 + "/jobs"
    CURRENT_JOB = JOBS + "/current"
    ASSETS = V1 + "/assets"
    ASSET = ASSETS + "/{asset_id}"


class ExternalURIs:
    CHAT_COMPLETIONS = "/chat/completions"
    AUDIO_SPEECH = "/audio/speech"
