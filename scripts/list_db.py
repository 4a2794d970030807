import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
from sqlalchemy import func, inspect, select

import database

load_dotenv()
store = database.StoreConnection.from_settings(database.load_store_settings())
if not store.open():
    print('NO_CONNECTION')
    store.close()
    sys.exit(0)
ins = inspect(store.engine)
print('TABLES:', ins.get_table_names())
with store.session() as s:
    for model in (database.Category, database.Game):
        try:
            cnt = s.scalar(select(func.count()).select_from(model))
            print(f"{model.__tablename__}: {cnt}")
        except Exception as e:
            print(f"{model.__tablename__}: ERROR {e}")
store.close()
