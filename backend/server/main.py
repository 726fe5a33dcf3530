import uvicorn
from fastapi import FastAPI
from server.api_router import api_router
from server.errors import install_error_handlers
from config.settings import UVICORN_CONFIG
from server.api.rest.dependencies import shutdown_dependencies

# 初始化 FastAPI 应用
app = FastAPI(title="cinelog", description="电影/剧集观影记录后端API")

# 错误类型 -> HTTP 状态码
install_error_handlers(app)

# 添加路由
app.include_router(api_router)


@app.on_event("shutdown")
async def shutdown_event():
    """应用关闭时清理资源（连接池 / Mongo 客户端）"""
    await shutdown_dependencies()


# 启动服务器
if __name__ == "__main__":
    uvicorn.run("server.main:app", **UVICORN_CONFIG)
