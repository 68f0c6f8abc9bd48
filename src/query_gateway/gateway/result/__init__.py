"""결과 적재와 타입 정규화."""
