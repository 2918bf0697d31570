import uvicorn
from cohort_scheduler import create_app

# Create the FastAPI app using the create_app function
app = create_app()

if __name__ == "__main__":
    uvicorn.run("cohort_scheduler.run:app", host="0.0.0.0", port=8000, reload=False)
