from mangum import Mangum

from app.main import MESSAGES, create_app

app = create_app(MESSAGES, title="Message Lambda")

handler = Mangum(app)
