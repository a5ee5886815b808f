from mangum import Mangum

from app.main import TODOS, create_app

app = create_app(TODOS, title="Todo Lambda")

handler = Mangum(app)
