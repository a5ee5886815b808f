from mangum import Mangum

from app.main import USERS, create_app

app = create_app(USERS, title="User Lambda")

handler = Mangum(app)
